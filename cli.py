from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

from utils import (
    Config, Timings, load_rgba, save_rgba,
    parse_dimensions, resolve_dimensions, parse_emit_targets,
)
from energy import sobel_energy
from ops import check_target_width, resize_width
from viz import SeamOverlay, EnergyEmitter, energy_to_rgba, chain_hooks, overlay_hook


def _fmt_carve_msg(over_what: str) -> str:
    return (
        f"Emits the seams used by the carver over {over_what}. The color of the seams "
        "determine when they were carved, with green being earlier than red."
    )


def _dimensions_type(arg: str):
    try:
        return parse_dimensions(arg)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _emit_targets_type(arg: str):
    try:
        return parse_emit_targets(arg)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_args(argv: Optional[Sequence[str]] = None) -> dict:
    ap = argparse.ArgumentParser(description="Content-aware image width reduction by seam carving")

    ap.add_argument("-v", "--timings", action="store_true",
                    help="Displays the timings of the operations.")

    ap.add_argument("-i", "--in", dest="input", metavar="path", required=True,
                    help="Path to the image to be resized.")
    ap.add_argument(
        "-s", "--size", dest="to_size", metavar="WIDTHxHEIGHT", required=True,
        type=_dimensions_type,
        help="The dimensions to which the image will be resized. Components are absolute "
             "by default but can be made relative with a leading `?` (e.g. `?-30xP`) and "
             "preserving with `P` (e.g. `300xP`).",
    )
    ap.add_argument("-o", "--out", dest="output", metavar="path",
                    help="Output image path. Omitting this argument will disable output saving.")

    # Debug emit flags
    ap.add_argument(
        "-W", "--emit-sobel", dest="emit_sobel", metavar="path", type=_emit_targets_type,
        help="Emits the result of the sobel filter, which determines the 'utility' of each "
             "pixel, at specified carving steps. Place a colon followed by a list of numbers "
             "(e.g. \"--emit-sobel=foo.png:1,2,3\") to specify when in the resize these "
             "images should be emitted.",
    )
    ap.add_argument("--emit-seams-on-original", dest="emit_seams_original", metavar="path",
                    help=_fmt_carve_msg("the original image"))
    ap.add_argument("-S", "--emit-seams", dest="emit_seams_weights", metavar="path",
                    help=_fmt_carve_msg("an image of the weights"))

    ap.add_argument(
        "--plan-only",
        action="store_true",
        help="Print the sizes and requested outputs, then exit without processing.",
    )

    return vars(ap.parse_args(argv))


def validate_and_normalize_args(a: dict) -> dict:
    if not os.path.exists(a["input"]):
        sys.exit(f"Error: Input image not found: {a['input']}")
    return a


def check_emit_steps(steps, i_max: int) -> None:
    bad = [s for s in steps if s > 0 and s >= i_max]
    if bad:
        sys.exit(
            "Error: Specified invalid `--emit-sobel` emission indices: "
            f"{', '.join(str(s) for s in bad)} "
            f"(there are only {i_max} step{'' if i_max == 1 else 's'})"
        )


def print_plan(args: dict, from_size, to_size, i_max: int) -> None:
    """Emit a deterministic, human-friendly plan and exit."""
    print("=== Seam Carving Plan ===")
    print(f"Input:           {args['input']}")
    print(f"Source size:     {from_size[0]}x{from_size[1]} (WxH)")
    print(f"Target size:     {to_size[0]}x{to_size[1]} (WxH)")
    print(f"Seams:           {i_max} vertical seam{'' if i_max == 1 else 's'} to remove")
    print(f"Output:          {args['output'] or '(disabled)'}")
    if args.get("emit_sobel"):
        path, steps = args["emit_sobel"]
        print(f"Emit sobel:      {path} at steps {', '.join(str(s) for s in steps)}")
    if args.get("emit_seams_original"):
        print(f"Seams/original:  {args['emit_seams_original']}")
    if args.get("emit_seams_weights"):
        print(f"Seams/weights:   {args['emit_seams_weights']}")
    print("Plan-only:       No processing will be performed.")
    sys.exit(0)


def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    args = validate_and_normalize_args(args)

    cfg = Config(show_timings=args["timings"])
    timings = Timings(verbose=cfg.show_timings)

    # Read input
    try:
        image = load_rgba(args["input"])
    except RuntimeError as e:
        sys.exit(f"Error: {e}")
    from_size = image.size()

    # Validate size parameters
    to_size = resolve_dimensions(from_size, args["to_size"])
    try:
        i_max = check_target_width(from_size, to_size)
    except ValueError as e:
        sys.exit(f"Error: {e}")

    if args.get("emit_sobel"):
        check_emit_steps(args["emit_sobel"][1], i_max)

    if args["plan_only"]:
        print_plan(args, from_size, to_size, i_max)

    starting_sobel = None
    if args.get("emit_sobel") or args.get("emit_seams_weights"):
        starting_sobel = sobel_energy(image, cfg.energy_sentinel, timings=timings)

    # Debug views
    emitter = None
    if args.get("emit_sobel"):
        path, steps = args["emit_sobel"]
        emitter = EnergyEmitter(path, steps)
        if 0 in steps:
            emitter.emit_initial(starting_sobel)

    seams_original = None
    if args.get("emit_seams_original"):
        seams_original = SeamOverlay(image.array, args["emit_seams_original"])

    seams_weights = None
    if args.get("emit_seams_weights"):
        seams_weights = SeamOverlay(energy_to_rgba(starting_sobel), args["emit_seams_weights"])

    on_seam = chain_hooks(
        emitter.on_seam if emitter else None,
        overlay_hook(seams_original, i_max),
        overlay_hook(seams_weights, i_max),
    )

    # Execute
    try:
        output = resize_width(image, to_size[0], cfg, on_seam=on_seam, timings=timings)

        # Save artifacts
        if args["output"]:
            save_rgba(args["output"], output.array)
        if seams_original is not None:
            seams_original.save()
        if seams_weights is not None:
            seams_weights.save()
    except RuntimeError as e:
        sys.exit(f"Error: {e}")

    if cfg.show_timings:
        timings.print_summary()


if __name__ == "__main__":
    main()
