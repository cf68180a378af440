from __future__ import annotations

import dataclasses
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
import yaml
from PIL import Image

from bannerstamp.config import load_config, write_default_config
from bannerstamp.decoders.image_decoder import decode_image
from bannerstamp.fonts import build_font_catalog
from bannerstamp.models import RenderRequest
from bannerstamp.params import decompose_request_params
from bannerstamp.pipeline import plan_request, render_banner
from bannerstamp.render.compositor import PillowCompositor
from bannerstamp.themes import ThemeRegistry, build_registry

app = typer.Typer(add_completion=False, no_args_is_help=True, help="BannerStamp text overlay CLI.")
LOGGER = logging.getLogger("bannerstamp")


@dataclass(slots=True)
class _Result:
    label: str
    status: str          # ok | failed
    output: Path | None = None
    elapsed: float = 0.0
    error: str | None = None


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_param_pairs(values: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for value in values:
        key, sep, item = str(value).partition("=")
        if not sep or not key.strip():
            raise ValueError(f"parameter must look like key=value, got: {value!r}")
        params[key.strip()] = item
    return params


def _build_params(
    cfg: dict[str, Any],
    title: str | None,
    website: str | None,
    design: str | None,
    width: int | None,
    height: int | None,
    extra: list[str],
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "design": cfg.get("design"),
        "w": cfg.get("width"),
        "h": cfg.get("height"),
    }
    if cfg.get("layout_mode"):
        params["layout"] = cfg["layout_mode"]
    if cfg.get("output_format") and cfg["output_format"] != "auto":
        params["format"] = cfg["output_format"]
    explicit = {"title": title, "website": website, "design": design, "w": width, "h": height}
    params.update({key: value for key, value in explicit.items() if value is not None})
    params.update(_parse_param_pairs(extra))
    return params


def _load_registry(cfg: dict[str, Any], themes_file: Path | None) -> ThemeRegistry:
    extra = themes_file or (Path(cfg["themes_file"]).expanduser() if cfg.get("themes_file") else None)
    return build_registry(extra)


def _load_local_images(request: RenderRequest) -> dict[str, Image.Image]:
    images: dict[str, Image.Image] = {}
    if request.logo is None:
        return images
    path = Path(request.logo.source).expanduser()
    if path.is_file():
        images[request.logo.source] = decode_image(path)
    else:
        LOGGER.warning("Logo %s is not a local file, skipped", request.logo.source)
    return images


def _load_request_image(request: RenderRequest, default: Image.Image | None) -> Image.Image | None:
    if not request.image_url:
        return default
    path = Path(request.image_url).expanduser()
    if path.is_file():
        return decode_image(path)
    LOGGER.warning("Image %s is not a local file, using %s", request.image_url, "--image" if default else "placeholder")
    return default


def _with_logo_size(request: RenderRequest, images: dict[str, Image.Image]) -> RenderRequest:
    if request.logo is None or request.logo.source not in images:
        return request
    logo = dataclasses.replace(request.logo, natural_size=images[request.logo.source].size)
    return dataclasses.replace(request, logo=logo)


def _load_batch(path: Path) -> list[dict[str, Any]]:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"batch file must contain a list of parameter mappings: {path}")
    return data


@app.command()
def render(
    title: str | None = typer.Option(None, "--title", help="Headline text."),
    website: str | None = typer.Option(None, "--website", help="Attribution line under the title."),
    design: str | None = typer.Option(None, "--design", help="Theme id (see `bannerstamp themes`)."),
    width: int | None = typer.Option(None, "--width", "-w", min=100, max=4096),
    height: int | None = typer.Option(None, "--height", "-h", min=100, max=4096),
    image: Path | None = typer.Option(None, "--image", exists=True, dir_okay=False, resolve_path=True, help="Base image."),
    param: list[str] = typer.Option([], "--param", "-p", help="Extra request parameter, e.g. hl=gold,cyan"),
    batch: Path | None = typer.Option(None, "--batch", exists=True, dir_okay=False, help="YAML list of parameter mappings."),
    out: Path = typer.Option(Path("output"), "--out", help="Output directory."),
    quality: int | None = typer.Option(None, "--quality", min=1, max=100),
    fonts_dir: Path | None = typer.Option(None, "--fonts-dir", help="Extra directory searched for typefaces."),
    themes_file: Path | None = typer.Option(None, "--themes", exists=True, dir_okay=False, help="YAML file of extra themes."),
    config: Path | None = typer.Option(None, "--config", help="Config file path."),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Render one banner (or a batch) and write the encoded images to --out."""
    cfg = load_config(config)
    _setup_logging(log_level or str(cfg.get("log_level", "info")))

    try:
        registry = _load_registry(cfg, themes_file)
        base_params = _build_params(cfg, title, website, design, width, height, param)
        batch_params = [{**base_params, **item} for item in _load_batch(batch)] if batch else [base_params]
        base_image = decode_image(image) if image is not None else None
    except (OSError, RuntimeError, ValueError) as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    font_dirs = [path for path in (fonts_dir, cfg.get("fonts_dir")) if path]
    compositor = PillowCompositor(build_font_catalog([Path(path).expanduser() for path in font_dirs]))
    quality_val = int(quality if quality is not None else cfg.get("quality", 90))
    out.mkdir(parents=True, exist_ok=True)

    def process_one(index: int, params: dict[str, Any]) -> _Result:
        label = str(params.get("title") or f"#{index}")
        t0 = time.perf_counter()
        try:
            request = decompose_request_params(params)
            images = _load_local_images(request)
            request = _with_logo_size(request, images)
            item_image = _load_request_image(request, base_image)
            result = render_banner(
                request,
                registry=registry,
                compositor=compositor,
                base_image=item_image,
                images=images,
                quality=quality_val,
                name_template=str(cfg.get("name_template")),
            )
            output_file = out / result.filename
            output_file.write_bytes(result.data)
            return _Result(label=label, status="ok", output=output_file, elapsed=time.perf_counter() - t0)
        except (OSError, RuntimeError, ValueError) as exc:
            return _Result(label=label, status="failed", error=str(exc), elapsed=time.perf_counter() - t0)

    results: list[_Result] = []
    for index, params in enumerate(batch_params, start=1):
        r = process_one(index, params)
        results.append(r)
        if r.status == "ok":
            LOGGER.info("OK   %s -> %s  (%.2fs)", r.label, r.output.name if r.output else "-", r.elapsed)
        else:
            LOGGER.error("FAIL %s  %s", r.label, r.error)

    ok = sum(1 for r in results if r.status == "ok")
    failed = [r for r in results if r.status == "failed"]
    typer.echo(f"Done. success={ok} failed={len(failed)}")
    if failed:
        typer.secho("Failures:", fg=typer.colors.RED)
        for r in failed:
            typer.secho(f"  {r.label}: {r.error}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command("plan")
def plan_command(
    title: str | None = typer.Option(None, "--title"),
    website: str | None = typer.Option(None, "--website"),
    design: str | None = typer.Option(None, "--design"),
    width: int | None = typer.Option(None, "--width", "-w", min=100, max=4096),
    height: int | None = typer.Option(None, "--height", "-h", min=100, max=4096),
    param: list[str] = typer.Option([], "--param", "-p"),
    themes_file: Path | None = typer.Option(None, "--themes", exists=True, dir_okay=False),
    config: Path | None = typer.Option(None, "--config"),
) -> None:
    """Print the computed scene plan as JSON without rasterizing."""
    cfg = load_config(config)
    try:
        registry = _load_registry(cfg, themes_file)
        request = decompose_request_params(_build_params(cfg, title, website, design, width, height, param))
        prepared = plan_request(request, registry)
    except (OSError, ValueError) as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)

    payload = {
        "theme": prepared.theme.id,
        "font_size": prepared.wrap.font_size_used,
        "lines": prepared.wrap.line_texts(),
        "layout": dataclasses.asdict(prepared.layout),
        "plan": {
            "width": prepared.plan.width,
            "height": prepared.plan.height,
            "output_size": list(prepared.plan.output_size),
            "overlay_top": prepared.plan.overlay_top,
            "transparent": prepared.plan.transparent,
            "font_families": list(prepared.plan.font_families),
            "operations": [
                {"op": type(op).__name__, **dataclasses.asdict(op)} for op in prepared.plan.operations
            ],
        },
    }
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command("themes")
def list_themes(
    themes_file: Path | None = typer.Option(None, "--themes", exists=True, dir_okay=False),
    as_json: bool = typer.Option(False, "--json", help="Dump full theme tokens as JSON."),
) -> None:
    """List the available design themes."""
    try:
        registry = build_registry(themes_file)
    except (OSError, ValueError) as exc:
        typer.secho(f"Theme load failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    if as_json:
        typer.echo(json.dumps([theme.to_dict() for theme in registry], ensure_ascii=False, indent=2))
        return
    for theme in registry:
        typer.echo(f"{theme.id:<20} {theme.display_name}")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
