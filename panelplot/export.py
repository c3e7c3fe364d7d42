from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
import io
import logging
from pathlib import Path
from typing import Protocol
import xml.etree.ElementTree as ET

from PIL import Image

from panelplot.errors import DecodeError, ExportError
from panelplot.options import EXPORT_FORMATS, ExportFormat, PlotOptions, PrintMetadata
from panelplot.render.raster import flatten_on_white, rasterize
from panelplot.render.svg import SvgDocument, scene_to_svg
from panelplot.scene import Element, Transform

LOGGER = logging.getLogger(__name__)

CSS_DPI = 96.0
VECTOR_FORMATS: tuple[str, ...] = ("svg", "pdf")
DEFAULT_FILENAME = "figure"
TITLE_Y = -40.0
PRINT_FONT_FAMILY = "'Helvetica Neue',Helvetica,Arial,sans-serif"


@dataclass(frozen=True)
class ExportJob:
    """Print-space geometry for one export request."""

    format: ExportFormat
    dpi: float
    print_width_in: float
    print_height_in: float
    print_plot_width_in: float
    print_margin_top_in: float
    plot_ratio: float

    def __post_init__(self) -> None:
        if self.format not in EXPORT_FORMATS:
            raise ValueError(f"export format must be one of {EXPORT_FORMATS}, got {self.format!r}")
        if self.dpi <= 0:
            raise ValueError("dpi must be > 0")

    @classmethod
    def for_format(cls, format: str, options: PlotOptions) -> "ExportJob":
        if format not in EXPORT_FORMATS:
            raise ValueError(f"export format must be one of {EXPORT_FORMATS}, got {format!r}")
        dpi = CSS_DPI if format in VECTOR_FORMATS else float(options.print_dpi)
        return cls(
            format=format,  # type: ignore[arg-type]
            dpi=dpi,
            print_width_in=options.print_width,
            print_height_in=options.print_height,
            print_plot_width_in=options.print_plot_width,
            print_margin_top_in=options.print_margin_top,
            plot_ratio=options.plot_ratio,
        )

    @property
    def plot_width(self) -> float:
        return self.print_plot_width_in * self.dpi

    @property
    def plot_height(self) -> float:
        return self.plot_width / self.plot_ratio

    @property
    def svg_width(self) -> float:
        return self.print_width_in * self.dpi

    @property
    def svg_height(self) -> float:
        return self.print_height_in * self.dpi

    @property
    def margin_top(self) -> float:
        return self.print_margin_top_in * self.dpi

    @property
    def margin_left(self) -> float:
        """Page width left of the plot, which holds the y-axis labels."""
        return self.svg_width - self.plot_width

    @property
    def scale_dpi(self) -> float:
        return self.dpi / CSS_DPI

    def scale_plot(self, live_svg_width: float) -> float:
        return self.plot_width / live_svg_width


@dataclass(frozen=True)
class ExportResult:
    job: ExportJob
    filename: str
    markup: str
    path: Path | None


class ExportSink(Protocol):
    def write_text(self, name: str, text: str) -> Path: ...

    def write_bytes(self, name: str, data: bytes) -> Path: ...


class DirectorySink:
    def __init__(self, out_dir: str | Path) -> None:
        self.out_dir = Path(out_dir)

    def write_text(self, name: str, text: str) -> Path:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / name
        path.write_text(text, encoding="utf-8")
        return path

    def write_bytes(self, name: str, data: bytes) -> Path:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / name
        path.write_bytes(data)
        return path


class PrintView(Protocol):
    def show(self, image: Image.Image) -> None: ...

    def print(self) -> Path | None: ...

    def close(self) -> None: ...


class PrintTarget(Protocol):
    def open(self, title: str, *, dpi: float) -> PrintView: ...


class PdfPrintTarget:
    """Print target that "prints" a margin-less page to a PDF file in a sink."""

    def __init__(self, sink: ExportSink) -> None:
        self.sink = sink

    def open(self, title: str, *, dpi: float) -> "_PdfView":
        return _PdfView(self.sink, title, dpi)


class _PdfView:
    def __init__(self, sink: ExportSink, title: str, dpi: float) -> None:
        self.sink = sink
        self.title = title
        self.dpi = dpi
        self.image: Image.Image | None = None

    def show(self, image: Image.Image) -> None:
        self.image = image

    def print(self) -> Path | None:
        if self.image is None:
            raise ExportError("print view has nothing to print")
        buf = io.BytesIO()
        self.image.convert("RGB").save(buf, format="PDF", resolution=self.dpi, title=self.title)
        return self.sink.write_bytes(f"{self.title}.pdf", buf.getvalue())

    def close(self) -> None:
        self.image = None


class OffscreenHost:
    """Detached scene copies that exist only while an export is in flight."""

    def __init__(self) -> None:
        self.nodes: list[Element] = []

    def attach(self, node: Element) -> Element:
        self.nodes.append(node)
        return node

    def detach(self, node: Element) -> None:
        self.nodes = [n for n in self.nodes if n is not node]
        node.clear()

    def __len__(self) -> int:
        return len(self.nodes)


def render_to_image(
    markup: str,
    *,
    width: float,
    height: float,
    executor: Executor,
) -> Future[Image.Image]:
    """Decode ``markup`` to an RGBA image; the future fails with ``DecodeError``."""
    return executor.submit(_decode, markup, width, height)


def _decode(markup: str, width: float, height: float) -> Image.Image:
    try:
        document = SvgDocument.from_markup(markup)
        return rasterize(document, width=int(round(width)), height=int(round(height)))
    except (ET.ParseError, ValueError) as exc:
        raise DecodeError(f"could not decode figure markup: {exc}") from exc


class ExportPipeline:
    """Re-lays the live scene out on a print page and emits svg, png, jpeg or pdf."""

    def __init__(
        self,
        options: PlotOptions,
        metadata: PrintMetadata | None = None,
        *,
        sink: ExportSink | None = None,
        print_target: PrintTarget | None = None,
        host: OffscreenHost | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.options = options
        self.metadata = metadata if metadata is not None else PrintMetadata()
        self.sink = sink if sink is not None else DirectorySink(Path.cwd())
        self.print_target = print_target if print_target is not None else PdfPrintTarget(self.sink)
        self.host = host if host is not None else OffscreenHost()
        self.executor = executor

    def build_print_scene(
        self,
        live_root: Element,
        job: ExportJob,
        *,
        title: str,
        live_svg_width: float,
        live_plot_width: float,
    ) -> Element:
        opts = self.options
        clone = self.host.attach(live_root.clone())
        clone.attrs.pop("viewBox", None)
        clone.attrs.pop("preserveAspectRatio", None)
        clone.attrs["width"] = job.svg_width
        clone.attrs["height"] = job.svg_height
        clone.style["font-family"] = PRINT_FONT_FAMILY

        plot = clone.select("plot")
        if plot is None:
            raise ExportError("scene has no plot group")
        tooltip = plot.select("d3-tooltip")
        if tooltip is not None:
            tooltip.clear()
        plot.transform = Transform(
            translate=(job.margin_left, job.margin_top),
            scale=job.scale_plot(live_svg_width),
        )
        plot.append(
            "text",
            cls="plot-title",
            attrs={
                "x": live_plot_width / 2.0,
                "y": TITLE_Y,
                "text-anchor": "middle",
                "alignment-baseline": "text-after-edge",
                "fill": opts.text_color,
            },
            style={"font-size": opts.title_font_size},
            text=title,
        )

        scale_dpi = job.scale_dpi
        pad = opts.print_footer_padding * scale_dpi
        footer = clone.append(
            "g",
            cls="print-footer",
            style={"font-size": opts.print_footer_font_size * scale_dpi},
            transform=Transform(translate=(pad, job.svg_height - pad)),
        )
        lines = self.metadata.footer_lines()
        n = len(lines)
        for i in range(n):
            footer.append(
                "text",
                attrs={"y": -opts.print_footer_line_break * i * scale_dpi, "fill": opts.text_color},
                text=lines[n - i - 1],
            )
        return clone

    def export(
        self,
        live_root: Element,
        format: str,
        *,
        title: str = "",
        filename: str | None = None,
        live_svg_width: float | None = None,
        live_plot_width: float | None = None,
    ) -> ExportResult:
        job = ExportJob.for_format(format, self.options)
        name = filename or DEFAULT_FILENAME
        svg_width = live_svg_width if live_svg_width is not None else self.options.svg_width
        plot_width = live_plot_width if live_plot_width is not None else self.options.plot_width
        clone: Element | None = None
        try:
            clone = self.build_print_scene(
                live_root,
                job,
                title=title,
                live_svg_width=svg_width,
                live_plot_width=plot_width,
            )
            markup = scene_to_svg(clone)
            image = self._decode(markup, job)
            canvas = flatten_on_white(image)
            path = self._dispatch(job, name, markup, canvas)
        except ExportError:
            LOGGER.exception("export to %s failed", format)
            raise
        finally:
            if clone is not None:
                self.host.detach(clone)
        LOGGER.info("exported %s (%.0fx%.0f px at %.0f dpi) to %s", job.format, job.svg_width, job.svg_height, job.dpi, path)
        return ExportResult(job=job, filename=name, markup=markup, path=path)

    def _decode(self, markup: str, job: ExportJob) -> Image.Image:
        if self.executor is not None:
            return render_to_image(markup, width=job.svg_width, height=job.svg_height, executor=self.executor).result()
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="panelplot-decode") as pool:
            return render_to_image(markup, width=job.svg_width, height=job.svg_height, executor=pool).result()

    def _dispatch(self, job: ExportJob, name: str, markup: str, canvas: Image.Image) -> Path | None:
        if job.format == "svg":
            return self.sink.write_text(f"{name}.svg", markup)
        if job.format in {"png", "jpeg"}:
            buf = io.BytesIO()
            if job.format == "png":
                canvas.save(buf, format="PNG", dpi=(job.dpi, job.dpi))
            else:
                canvas.save(buf, format="JPEG", quality=95, dpi=(int(job.dpi), int(job.dpi)))
            return self.sink.write_bytes(f"{name}.{job.format}", buf.getvalue())
        view = self.print_target.open(name, dpi=job.dpi)
        try:
            view.show(canvas)
            return view.print()
        finally:
            view.close()
