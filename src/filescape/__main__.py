"""Main entry point for filescape.

Scans a folder and prints the block placements a renderer would receive.
Useful for checking scan results and layout parameters without a GUI.
"""

import argparse
import logging
import sys
from pathlib import Path

from filescape.classify.tagger import SniffPolicy
from filescape.controller.explorer import Explorer
from filescape.errors import FilescapeError, ValidationError, validate_directory
from filescape.layout.config import LayoutConfig, PlacementStrategy
from filescape.layout.engine import format_size
from filescape.model.scanner import ScanOptions


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="filescape",
        description="Scan a folder and print its 3D block layout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Root directory path to visualize (default: current directory)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=2,
        metavar="N",
        help="Directory depth scanned before deferring to on-demand scans (default: 2)",
    )
    parser.add_argument(
        "--show-hidden",
        action="store_true",
        help="Include hidden files and directories",
    )
    parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        help="Follow symbolic links while scanning",
    )
    parser.add_argument(
        "--node-limit",
        type=int,
        default=500_000,
        metavar="N",
        help="Abort scans visiting more than N nodes (default: 500000)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=256,
        metavar="N",
        help="Top-N items shown before the rest are grouped as Others (default: 256)",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in PlacementStrategy],
        default=PlacementStrategy.FAMILY_ARMS.value,
        help="Placement strategy (default: family_arms)",
    )
    parser.add_argument(
        "--gap-scale",
        type=float,
        default=1.0,
        help="Gap multiplier between 0 and 2 (default: 1.0)",
    )
    parser.add_argument(
        "--alpha-scale",
        type=float,
        default=1.0,
        help="Transparency intensity between 0 and 1 (default: 1.0)",
    )
    parser.add_argument(
        "--age-height",
        action="store_true",
        help="Use modification age for block height (older files sink)",
    )
    parser.add_argument(
        "--sniff-largest-first",
        action="store_true",
        help="Spend the content sniffing budget on the largest unknown files first",
    )
    parser.add_argument(
        "--search",
        default="",
        help="Mark items whose name contains this text",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    root_path = args.path.resolve()
    try:
        validate_directory(root_path)
        scan_options = ScanOptions(
            include_hidden=args.show_hidden,
            follow_symlinks=args.follow_symlinks,
            max_depth=args.max_depth,
            node_count_limit=args.node_limit,
        )
        layout_config = LayoutConfig.from_scales(
            args.gap_scale,
            args.alpha_scale,
            strategy=PlacementStrategy(args.strategy),
            use_age_for_height=args.age_height,
        )
        explorer = Explorer(root_path, scan_options, layout_config)
        explorer.limit = args.limit
        explorer.search_text = args.search
        if args.sniff_largest_first:
            explorer.sniff_policy = SniffPolicy.LARGEST_FIRST

        root = explorer.rescan()
        view = explorer.build()
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FilescapeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"{root.path}: {format_size(root.size_bytes)} in {root.file_count} files")
    if view.overlay_message:
        print(view.overlay_message)
    for p in view.result.placements:
        flags = ("*" if p.matched else " ") + ("O" if p.is_others else " ")
        print(
            f"{flags} {p.family:<9} {p.tag:<14} rel={p.rel:.2f} "
            f"pos=({p.x:7.2f}, {p.y:6.2f}, {p.z:7.2f}) side={p.width:.2f} "
            f"h={p.height:.2f} a={p.alpha:.2f}  {p.name}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
