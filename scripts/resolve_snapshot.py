#!/usr/bin/env python3
"""
Resolve a recorded element descriptor against a saved page.

Usage:
    # Static HTML with an optional layout map (selector -> {x, y, width, height})
    python scripts/resolve_snapshot.py --html page.html --descriptor button.json

    python scripts/resolve_snapshot.py --html page.html --layout layout.json \\
        --descriptor button.json --preset tolerant

    # A page captured with relocator.dom.capture_snapshot's payload
    python scripts/resolve_snapshot.py --capture capture.json --descriptor button.json --once
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from relocator.config import Preset, get_preset  # noqa: E402
from relocator.dom.snapshot import SnapshotDOM  # noqa: E402
from relocator.geometry import BoundingBox  # noqa: E402
from relocator.locators import ElementDescriptor, ElementResolver  # noqa: E402
from relocator.utils.logging import configure_logging  # noqa: E402


def load_json(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def load_dom(args: argparse.Namespace) -> SnapshotDOM:
    if args.capture:
        return SnapshotDOM.from_capture(load_json(args.capture))
    layout = {}
    if args.layout:
        layout = {selector: BoundingBox.from_dict(rect) for selector, rect in load_json(args.layout).items()}
    return SnapshotDOM.from_html(Path(args.html).read_text(encoding="utf-8"), layout=layout)


async def resolve(args: argparse.Namespace) -> int:
    settings = get_preset(args.preset, log_level=args.log_level)
    configure_logging(settings.log_level, json_format=settings.log_json)

    dom = load_dom(args)
    descriptor = ElementDescriptor.from_dict(load_json(args.descriptor))
    resolver = ElementResolver.from_settings(settings)

    if args.once:
        result = await resolver.find_once(descriptor, dom)
    else:
        result = await resolver.find(descriptor, dom)

    output = result.to_dict()
    if result.found:
        tag = await dom.tag_name(result.element)
        output["element"] = {
            "tag": tag,
            "id": await dom.attribute(result.element, "id"),
            "text": (await dom.visible_text(result.element))[:100],
        }
    output["descriptor_quality"] = descriptor.quality_score()
    print(json.dumps(output, indent=2))
    return 0 if result.found else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve an element descriptor against a saved page")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--html", help="HTML file to search")
    source.add_argument("--capture", help="Captured page JSON to search")
    parser.add_argument("--layout", help="JSON map of CSS selector to bounding box (with --html)")
    parser.add_argument("--descriptor", required=True, help="Recorded descriptor JSON file")
    parser.add_argument(
        "--preset",
        default=Preset.DEFAULT.value,
        choices=[p.value for p in Preset],
        help="Configuration preset",
    )
    parser.add_argument("--once", action="store_true", help="Single pass, no retries")
    parser.add_argument("--log-level", default="WARNING", help="Log level")
    args = parser.parse_args()

    if args.layout and not args.html:
        parser.error("--layout requires --html")

    return asyncio.run(resolve(args))


if __name__ == "__main__":
    sys.exit(main())
