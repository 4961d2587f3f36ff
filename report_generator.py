"""
Production Report Document Renderer
Lays out each page with matplotlib on an off-screen Agg surface, waits for
the draw to complete, rasterizes it and places the image as one full-width
A4 portrait page with reportlab.

Page layout:
    Plant: {name}
    grid of model blocks (1 column for a month, 2 for a whole year), each:
        status table (one column per day / month)
        model name
        overlaid bar + line chart, legend at the bottom

A page that fails to draw or rasterize aborts the whole document.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from io import BytesIO
from typing import Callable, Dict, List, Optional

import matplotlib
matplotlib.use('Agg')  # Headless rendering, no display needed
import matplotlib.ticker as ticker
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import FancyBboxPatch

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from aggregator import status_table
from chart_series import ChartSeries, TickStyle, series_from_table, tick_style, window_labels
from errors import ExportError, RenderError
from grouping import chunk, grid_columns, page_capacity
from logging_config import ReportLogger
from production_data import Model, TimeWindow, format_number
from status_schema import Status

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = 'application/pdf'

# A4 portrait in inches, same aspect as the reportlab page
A4_FIGSIZE = (210 / 25.4, 297 / 25.4)

# Share of a category slot used by the whole bar group
CATEGORY_FRACTION = 0.8
# chart point radius is in screen pixels, matplotlib marker sizes in points
PX_TO_PT = 0.75

COLORS = {
    'title': '#1e40af',
    'model_title': '#333333',
    'axis_text': '#2C3E50',
    'legend_text': '#4A4A4A',
    'grid': '#C8C8C8',
    'table_header_bg': '#F0F0F0',
    'table_text': '#374151',
    'table_edge': '#E5E7EB',
    'block_border': '#EEEEEE',
}


# =============================================================================
# PAGE DESCRIPTORS
# =============================================================================
@dataclass
class ModelBlock:
    """Everything needed to draw one model's table and chart"""
    model_name: str
    labels: List[str]
    table: Dict[Status, List[float]]
    series: List[ChartSeries]
    max_capacity: Optional[float]
    ticks: TickStyle


@dataclass
class PageSpec:
    index: int
    plant: str
    columns: int
    capacity: int
    blocks: List[ModelBlock] = field(default_factory=list)

    @property
    def model_names(self) -> List[str]:
        return [block.model_name for block in self.blocks]


# =============================================================================
# RENDERING SURFACE
# =============================================================================
class RenderSurface:
    """
    Off-screen matplotlib figure reused for every page of one export.

    reset() replaces the whole content, wait_until_drawn() blocks (without
    sleeping blindly) until the canvas reports a finished draw, and close()
    releases the figure. Use as a context manager so close() runs on every
    exit path.
    """

    def __init__(self, dpi=200, draw_timeout=10.0, poll_interval=0.01,
                 figsize=A4_FIGSIZE):
        self.dpi = dpi
        self.draw_timeout = draw_timeout
        self.poll_interval = poll_interval
        self.figure = Figure(figsize=figsize, dpi=dpi, facecolor='white')
        self.canvas = FigureCanvasAgg(self.figure)
        self._draw_cid = self.canvas.mpl_connect('draw_event', self._on_draw)
        self._drawn = False
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _on_draw(self, event):
        self._drawn = True

    def _ensure_open(self):
        if self.closed:
            raise RenderError("Render surface already closed")

    def reset(self) -> Figure:
        self._ensure_open()
        self.figure.clear()
        self._drawn = False
        return self.figure

    async def wait_until_drawn(self):
        """Request a draw and poll for the draw-complete event, bounded by draw_timeout"""
        self._ensure_open()
        self._drawn = False
        self.canvas.draw_idle()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.draw_timeout
        while not self._drawn:
            if loop.time() >= deadline:
                raise RenderError(
                    f"Page did not finish drawing within {self.draw_timeout}s")
            await asyncio.sleep(self.poll_interval)

    def rasterize(self) -> bytes:
        """PNG image of the current page"""
        self._ensure_open()
        if not self._drawn:
            raise RenderError("Page rasterized before drawing completed")
        buffer = BytesIO()
        self.figure.savefig(buffer, format='png', dpi=self.dpi, facecolor='white')
        return buffer.getvalue()

    def close(self):
        if self.closed:
            return
        self.canvas.mpl_disconnect(self._draw_cid)
        self.figure.clear()
        self.closed = True


# =============================================================================
# DOCUMENT RENDERER
# =============================================================================
class DocumentPageRenderer:
    """Builds the multi-page production report PDF"""

    def __init__(self, window: TimeWindow, dpi=200, draw_timeout=10.0,
                 poll_interval=0.01, report_logger: Optional[ReportLogger] = None,
                 surface_factory: Optional[Callable[..., RenderSurface]] = None):
        self.window = window
        self.dpi = dpi
        self.draw_timeout = draw_timeout
        self.poll_interval = poll_interval
        self.log = report_logger or ReportLogger(__name__)
        self.surface_factory = surface_factory or RenderSurface
        self.labels = window_labels(window)
        self.ticks = tick_style(len(self.labels), window.is_daily)
        self.pages_written = 0

    def build_block(self, model: Model) -> ModelBlock:
        table = status_table(model, self.window)
        return ModelBlock(
            model_name=model.name,
            labels=self.labels,
            table=table,
            series=series_from_table(table),
            max_capacity=model.max_capacity,
            ticks=self.ticks,
        )

    def plan_pages(self, grouped: Dict[str, List[Model]]) -> List[PageSpec]:
        """Page descriptors in output order: plants, then chunks, then models"""
        capacity = page_capacity(self.window)
        columns = grid_columns(self.window)
        pages = []
        for plant, models in grouped.items():
            for models_on_page in chunk(models, capacity):
                pages.append(PageSpec(
                    index=len(pages),
                    plant=plant,
                    columns=columns,
                    capacity=capacity,
                    blocks=[self.build_block(m) for m in models_on_page],
                ))
        return pages

    async def render(self, grouped: Dict[str, List[Model]]) -> bytes:
        """Render every page and return the PDF bytes"""
        pages = self.plan_pages(grouped)
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        self.pages_written = 0

        with self.surface_factory(dpi=self.dpi, draw_timeout=self.draw_timeout,
                                  poll_interval=self.poll_interval) as surface:
            for page in pages:
                try:
                    image = await self.render_page(surface, page)
                except RenderError as e:
                    self.log.fault('RENDER', f"Page {page.index + 1} ({page.plant}): {e}")
                    raise
                except Exception as e:
                    self.log.fault('RENDER', f"Page {page.index + 1} ({page.plant}): {e}")
                    raise RenderError(
                        f"Failed to render page {page.index + 1} for plant {page.plant!r}: {e}"
                    ) from e
                self._append_page(pdf, image)
                self.log.page_rendered(page.index + 1, page.plant, len(page.blocks))

        try:
            pdf.save()
        except (OSError, ValueError) as e:
            raise ExportError(f"PDF serialization failed: {e}") from e
        return buffer.getvalue()

    async def render_page(self, surface: RenderSurface, page: PageSpec) -> bytes:
        figure = surface.reset()
        self.layout_page(figure, page)
        await surface.wait_until_drawn()
        return surface.rasterize()

    def _append_page(self, pdf, image_png: bytes):
        """Full-width image, top aligned; every page after the first starts a new one"""
        if self.pages_written > 0:
            pdf.showPage()
        img_reader = ImageReader(BytesIO(image_png))
        img_w, img_h = img_reader.getSize()
        page_width, page_height = A4
        draw_height = page_width * img_h / img_w
        pdf.drawImage(img_reader, 0, page_height - draw_height,
                      width=page_width, height=draw_height)
        self.pages_written += 1

    # -------------------------------------------------------------------------
    # Page layout
    # -------------------------------------------------------------------------
    def layout_page(self, figure: Figure, page: PageSpec):
        figure.text(0.5, 0.985, f"Plant: {page.plant}", ha='center', va='top',
                    fontsize=12, fontweight='bold', color=COLORS['title'])

        rows = math.ceil(page.capacity / page.columns)
        grid = figure.add_gridspec(rows, page.columns, left=0.03, right=0.97,
                                   top=0.95, bottom=0.02, hspace=0.12, wspace=0.08)
        daily = self.window.is_daily
        for position, block in enumerate(page.blocks):
            row, col = divmod(position, page.columns)
            slot = grid[row, col]
            self._draw_block_border(figure, slot)
            parts = slot.subgridspec(2, 1, height_ratios=[1, 2.2] if daily else [1, 1.8],
                                     hspace=0.25)
            self._draw_table(figure.add_subplot(parts[0]), block)
            self._draw_chart(figure.add_subplot(parts[1]), block)

    def _draw_block_border(self, figure, slot):
        bbox = slot.get_position(figure)
        figure.add_artist(FancyBboxPatch(
            (bbox.x0, bbox.y0), bbox.width, bbox.height,
            boxstyle='round,pad=0.003', transform=figure.transFigure,
            fill=False, edgecolor=COLORS['block_border'], linewidth=0.8,
        ))

    def _draw_table(self, ax, block: ModelBlock):
        ax.axis('off')
        daily = self.window.is_daily
        col_labels = ['STATUS'] + block.labels
        cell_text = [[status.label] + [format_number(v) for v in values]
                     for status, values in block.table.items()]

        label_width = 0.1 if daily else 0.14
        data_width = (1 - label_width) / max(len(block.labels), 1)
        table = ax.table(cellText=cell_text, colLabels=col_labels, cellLoc='center',
                         colWidths=[label_width] + [data_width] * len(block.labels),
                         bbox=[0, 0, 1, 1])
        table.auto_set_font_size(False)
        table.set_fontsize(3.5 if daily else 5)

        for (row, col), cell in table.get_celld().items():
            cell.set_edgecolor(COLORS['table_edge'])
            cell.set_linewidth(0.3)
            cell.get_text().set_color(COLORS['table_text'])
            if row == 0:
                cell.set_facecolor(COLORS['table_header_bg'])
                cell.get_text().set_fontweight('bold')
            if col == 0:
                cell.get_text().set_horizontalalignment('left')
                cell.PAD = 0.05

    def _draw_chart(self, ax, block: ModelBlock):
        ax.set_title(block.model_name, fontsize=7, fontweight='bold',
                     color=COLORS['model_title'], pad=3)
        positions = list(range(len(block.labels)))

        bars = [s for s in block.series if s.status.is_bar]
        bar_index = 0
        for series in block.series:
            # Lower draw order is painted on top
            zorder = 10 - series.draw_order
            if series.status.is_bar:
                width = (series.bar_width_fraction or 1.0) * CATEGORY_FRACTION / len(bars)
                offset = (bar_index - (len(bars) - 1) / 2) * width
                ax.bar([p + offset for p in positions], series.values, width=width,
                       color=series.color, label=series.label, zorder=zorder)
                bar_index += 1
            elif series.status.is_line:
                radius = series.point_radius or 0
                ax.plot(positions, series.values, color=series.color, label=series.label,
                        linewidth=1.0, marker='o' if radius else None,
                        markersize=2 * radius * PX_TO_PT, zorder=zorder)

        ax.set_xticks(positions)
        ax.set_xticklabels(block.labels, fontsize=block.ticks.font_size,
                           rotation=block.ticks.rotation, fontweight='bold',
                           color=COLORS['axis_text'])
        ax.set_xlim(-0.5, len(positions) - 0.5)
        ax.tick_params(axis='x', length=0)
        ax.tick_params(axis='y', labelsize=5, colors=COLORS['legend_text'])
        ax.yaxis.set_major_formatter(ticker.FuncFormatter(lambda v, _: format_number(v)))
        ax.grid(axis='y', color=COLORS['grid'], alpha=0.3, linewidth=0.5)
        ax.set_axisbelow(True)
        for side in ('top', 'right'):
            ax.spines[side].set_visible(False)

        if block.max_capacity is not None and block.max_capacity > 0:
            ax.set_ylim(0, block.max_capacity)
        else:
            ax.set_ylim(bottom=0)

        if block.series:
            ax.legend(loc='upper center', bbox_to_anchor=(0.5, -0.28 if self.window.is_daily else -0.3),
                      ncol=len(block.series), fontsize=5, frameon=False,
                      handlelength=1.2, labelcolor=COLORS['legend_text'])
