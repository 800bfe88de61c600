"""planetgen command-line interface."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import fields
from typing import Optional, Sequence

import structlog

from .errors import PlanetGenError
from .io import load_parameters, save_parameters
from .params import PRESETS, GenerationParameters, Topology


def configure_logging(level: str = "INFO", *, json_output: bool = False) -> None:
    """Route structlog through stdlib logging on stderr."""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper())
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _add_parameter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--preset", choices=sorted(PRESETS), default="earthlike")
    parser.add_argument("--params", dest="params_path", help="JSON parameter file")
    group = parser.add_argument_group("parameter overrides")
    for f in fields(GenerationParameters):
        kind = int if f.name in ("seed", "level_of_detail") else float
        group.add_argument(f"--{f.name.replace('_', '-')}", dest=f.name, type=kind)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="planetgen", description="Procedural planet generator")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--log-json", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate a planet mesh")
    _add_parameter_args(generate)
    generate.add_argument("--topology", choices=[t.value for t in Topology], default="geodesic")
    generate.add_argument("--workers", type=int)
    generate.add_argument("--out", dest="output_path", help="Mesh JSON output")
    generate.add_argument("--render-out", dest="render_path", help="3-D preview PNG")
    generate.add_argument("--map-out", dest="map_path", help="Flat biome map PNG")
    generate.add_argument("--diagnose", action="store_true")

    bake = sub.add_parser("bake", help="Bake an equirectangular heightmap PNG")
    _add_parameter_args(bake)
    bake.add_argument("--width", type=int, default=512)
    bake.add_argument("--height", type=int, default=256)
    bake.add_argument("--workers", type=int)
    bake.add_argument("--normalize", action="store_true")
    bake.add_argument("--out", dest="output_path", required=True)
    bake.add_argument("--normal-map-out", dest="normal_map_path")

    params = sub.add_parser("params", help="Print or save a resolved parameter record")
    _add_parameter_args(params)
    params.add_argument("--camel-case", action="store_true")
    params.add_argument("--out", dest="output_path")

    return parser


def resolve_parameters(args: argparse.Namespace) -> GenerationParameters:
    """Preset, then parameter file, then individual flag overrides."""
    params = PRESETS[args.preset]
    if args.params_path:
        params = load_parameters(args.params_path)
    overrides = {
        f.name: getattr(args, f.name)
        for f in fields(GenerationParameters)
        if getattr(args, f.name, None) is not None
    }
    return params.replace(**overrides).clamped()


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_output=args.log_json)

    try:
        if args.command == "generate":
            _cmd_generate(args)
        elif args.command == "bake":
            _cmd_bake(args)
        elif args.command == "params":
            _cmd_params(args)
    except PlanetGenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1)


def _cmd_generate(args) -> None:
    from .diagnostics import mesh_report
    from .orchestrator import PlanetGenerator

    params = resolve_parameters(args)
    gen = PlanetGenerator(params, topology=args.topology, workers=args.workers)
    with gen:
        mesh = gen.regenerate()
        print(f"Generated {mesh.vertex_count} vertices, {mesh.triangle_count} triangles")

        if args.output_path:
            from .export import export_mesh_json
            export_mesh_json(mesh, gen.parameters, args.output_path, topology=gen.topology)
            print(f"Saved {args.output_path}")
        if args.render_path:
            from .render import render_mesh_3d
            render_mesh_3d(mesh, args.render_path)
            print(f"Saved {args.render_path}")
        if args.map_path:
            from .render import render_biome_map
            render_biome_map(gen.parameters, args.map_path)
            print(f"Saved {args.map_path}")
        if args.diagnose:
            report = mesh_report(mesh)
            print(f"  closed manifold:     {report.closed_manifold}")
            print(f"  boundary edges:      {report.boundary_edges}")
            print(f"  duplicate positions: {report.duplicate_positions}")
            print(f"  inward faces:        {report.inward_faces}")
            print(f"  min triangle area:   {report.min_triangle_area:.6g}")
            for kind, n in mesh.biome_counts().items():
                print(f"  {kind.name.lower():<11} {n}")


def _cmd_bake(args) -> None:
    from .raster import bake, bake_normal_map

    params = resolve_parameters(args)
    params.validate()
    raster = bake(args.width, args.height, params, workers=args.workers)
    raster.save_png(args.output_path, normalize=args.normalize)
    print(f"Saved {args.output_path}")

    if args.normal_map_path:
        from matplotlib import image as mpimg
        from pathlib import Path

        out = Path(args.normal_map_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        mpimg.imsave(out, bake_normal_map(raster), format="png")
        print(f"Saved {args.normal_map_path}")


def _cmd_params(args) -> None:
    params = resolve_parameters(args)
    if args.output_path:
        save_parameters(params, args.output_path, camel_case=args.camel_case)
        print(f"Saved {args.output_path}")
    else:
        print(json.dumps(params.to_record(camel_case=args.camel_case), indent=2))


if __name__ == "__main__":
    main()
