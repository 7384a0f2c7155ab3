import logging
from collections.abc import Awaitable, Callable
from html import escape

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pydantic import BaseModel

from schedule_app.core.config import settings
from schedule_app.core.dates import format_date, format_time
from schedule_app.core.exceptions import RenderError
from schedule_app.models.appointment import Appointment
from schedule_app.models.category import category_info

logger = logging.getLogger(__name__)

CARD_SELECTOR = "#confirmation-card"


class RasterizeOptions(BaseModel):
    scale: int = 2
    background_color: str = "#ffffff"
    cross_origin: bool = True

    @classmethod
    def from_settings(cls) -> "RasterizeOptions":
        return cls(
            scale=settings.confirmation_image_scale,
            background_color=settings.confirmation_background_color,
            cross_origin=settings.confirmation_cross_origin,
        )


Rasterizer = Callable[[str, RasterizeOptions], Awaitable[bytes]]


def build_confirmation_card_html(appointment: Appointment, background_color: str = "#ffffff") -> str:
    """Build the confirmation card that gets rasterized after saving."""
    info = category_info(appointment.category)
    date_str = format_date(appointment.date, "long")
    time_str = format_time(appointment.time)
    end_str = format_time(appointment.end.time())
    notes_section = ""
    if appointment.notes:
        notes_section = f"""
        <p style="margin:16px 0 4px 0;font-size:12px;color:#6b7280;">Notes</p>
        <p style="margin:0;font-size:14px;color:#374151;white-space:pre-wrap;">{escape(appointment.notes)}</p>
        """
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Appointment Confirmation</title>
</head>
<body style="margin:0;padding:16px;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,'Hiragino Sans',sans-serif;background-color:{escape(background_color)};">
  <div id="confirmation-card" style="display:inline-block;min-width:320px;padding:24px;background:{escape(background_color)};border:1px solid #d1d5db;border-radius:8px;color:#1f2937;">
    <p style="margin:0 0 12px 0;font-size:12px;font-weight:600;color:{info.color};">{escape(info.label)}</p>
    <p style="margin:0 0 4px 0;font-size:12px;color:#6b7280;">{escape(info.name_label)}</p>
    <p style="margin:0 0 16px 0;font-size:20px;font-weight:700;">{escape(appointment.display_name)}</p>
    <p style="margin:0;font-size:16px;font-weight:600;">{date_str} {time_str} – {end_str}</p>
    <p style="margin:4px 0 0 0;font-size:13px;color:#6b7280;">{appointment.duration_minutes} min</p>
    {notes_section}
    <p style="margin:20px 0 0 0;font-size:11px;color:#9ca3af;">{escape(settings.site_name)}</p>
  </div>
</body>
</html>
"""


def confirmation_filename(appointment: Appointment) -> str:
    return f"予約確認_{appointment.display_name or appointment.id}_{format_date(appointment.date)}.png"


async def rasterize_html(html: str, options: RasterizeOptions) -> bytes:
    """Screenshot the confirmation card with headless Chromium."""
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch()
            try:
                page = await browser.new_page(
                    device_scale_factor=options.scale,
                    bypass_csp=options.cross_origin,
                )
                await page.set_content(html, wait_until="networkidle")
                card = await page.query_selector(CARD_SELECTOR)
                if card is None:
                    raise RenderError(f"{CARD_SELECTOR} not found in rendered page")
                return await card.screenshot(type="png")
            finally:
                await browser.close()
    except PlaywrightError as e:
        raise RenderError(f"Rasterization failed: {e}") from e


class ConfirmationImageExporter:
    def __init__(self, rasterizer: Rasterizer = rasterize_html, options: RasterizeOptions | None = None):
        self.rasterizer = rasterizer
        self.options = options or RasterizeOptions.from_settings()

    async def export(self, appointment: Appointment) -> bytes:
        html = build_confirmation_card_html(appointment, self.options.background_color)
        logger.info("Rendering confirmation image for %s", appointment.id)
        try:
            image = await self.rasterizer(html, self.options)
        except RenderError:
            logger.exception("Confirmation image failed for %s", appointment.id)
            raise
        logger.info("Confirmation image ready for %s (%d bytes)", appointment.id, len(image))
        return image
