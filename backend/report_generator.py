# backend/report_generator.py
# Plant analysis PDF: title, date, analysis text, optional image. Rendered with reportlab's canvas.

from __future__ import annotations
import io, re, uuid, base64, logging, datetime
from pathlib import Path
from typing import Optional, Tuple, Union, BinaryIO

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.lib.utils import ImageReader, simpleSplit
from PIL import Image

logger = logging.getLogger(__name__)

# ---------- Layout ----------
MARGIN = 50
LINE_HEIGHT = 1.2          # leading as a multiple of font size

TITLE = "Plant Analysis Report"
TITLE_FONT, TITLE_SIZE = "Helvetica-Bold", 26
DATE_FONT, DATE_SIZE = "Helvetica-Oblique", 12
BODY_FONT, BODY_SIZE = "Helvetica", 14
BODY_LINE_GAP = 4

IMAGE_BOX = (500, 300)     # max width, height

FILENAME_PREFIX = "plant_analysis_report_"

_DATA_URL_PREFIX = re.compile(r"^data:[^,;]*(;[^,;]+)*;base64,", re.IGNORECASE)


class ReportDeliveryError(Exception):
    pass


# --------------------- helpers ----------------------
def decode_data_url(data_url: str) -> bytes:
    """Strip an optional ``data:<mime>;base64,`` prefix and decode the payload."""
    payload = _DATA_URL_PREFIX.sub("", data_url.strip(), count=1)
    # wrapped (MIME-style) base64 carries line breaks
    payload = "".join(payload.split())
    return base64.b64decode(payload, validate=True)


def report_filename() -> str:
    return f"{FILENAME_PREFIX}{uuid.uuid4().hex}.pdf"


def format_report_date(day: datetime.date) -> str:
    return f"Date: {day.month}/{day.day}/{day.year}"


def fit_box(width: float, height: float, box: Tuple[float, float] = IMAGE_BOX) -> Tuple[float, float]:
    bw, bh = box
    s = min(bw / width, bh / height)
    return width * s, height * s


def _discard(path: Path):
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove report file %s", path, exc_info=True)


def _load_image(image: str) -> Optional[ImageReader]:
    try:
        raw = decode_data_url(image)
        img = Image.open(io.BytesIO(raw))
        img.load()
        return ImageReader(img)
    except Exception:
        logger.exception("Skipping report image: data could not be decoded as an image")
        return None


# --------------------- rendering ----------------------
def render_report(out: Union[str, Path, BinaryIO], result, image: Optional[str] = None,
                  today: Optional[datetime.date] = None):
    text = "" if result is None else str(result)
    today = today or datetime.date.today()

    c = canvas.Canvas(str(out) if isinstance(out, Path) else out, pagesize=A4)
    c.setTitle(TITLE)
    W, H = A4; m = MARGIN; y = H - m
    content_w = W - 2 * m

    def new_page():
        nonlocal y
        c.showPage(); y = H - m

    def draw_line(line: str, font: str, size: float, gap: float = 0, centered: bool = False):
        nonlocal y
        leading = size * LINE_HEIGHT + gap
        if y - leading < m:
            new_page()
        c.setFont(font, size)
        baseline = y - size
        if centered:
            c.drawCentredString(W / 2, baseline, line)
        else:
            c.drawString(m, baseline, line)
        y -= leading

    def blank_line(size: float, gap: float = 0):
        nonlocal y
        y -= size * LINE_HEIGHT + gap

    # Title + date
    draw_line(TITLE, TITLE_FONT, TITLE_SIZE, centered=True)
    blank_line(TITLE_SIZE)
    draw_line(format_report_date(today), DATE_FONT, DATE_SIZE, centered=True)
    blank_line(DATE_SIZE)

    # Analysis body
    for para in text.replace("\t", "    ").splitlines() or [""]:
        for line in simpleSplit(para, BODY_FONT, BODY_SIZE, content_w) or [""]:
            draw_line(line, BODY_FONT, BODY_SIZE, gap=BODY_LINE_GAP)

    # Image
    reader = _load_image(image) if image else None
    if reader is not None:
        blank_line(BODY_SIZE, BODY_LINE_GAP)
        bw, bh = IMAGE_BOX
        if y - bh < m:
            new_page()
        iw, ih = reader.getSize()
        dw, dh = fit_box(iw, ih)
        x = m + (bw - dw) / 2
        top = y - (bh - dh) / 2
        c.drawImage(reader, x, top - dh, width=dw, height=dh, mask="auto")
        y -= bh

    c.showPage(); c.save()


def write_report(reports_dir: Union[str, Path], result, image: Optional[str] = None) -> Path:
    reports_dir = Path(reports_dir)
    reports_dir.mkdir(parents=True, exist_ok=True)
    path = reports_dir / report_filename()
    try:
        render_report(path, result, image)
    except Exception:
        _discard(path)
        raise
    return path


def build_report_bytes(reports_dir: Union[str, Path], result, image: Optional[str] = None) -> Tuple[bytes, str]:
    """Write the report to disk, read it back and remove it; returns (pdf_bytes, filename)."""
    path = write_report(reports_dir, result, image)
    try:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ReportDeliveryError(f"Could not read report {path.name}") from e
        return data, path.name
    finally:
        _discard(path)
