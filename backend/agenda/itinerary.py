from __future__ import annotations

import datetime as dt
import io
import logging
from typing import List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from .config import settings
from .errors import ActivityNotFoundError
from .models import Activity, TransportationType
from .services import load_activity_with_children

logger = logging.getLogger(__name__)

MONTHS_ID = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)

TRANSPORT_VERBS = {
    TransportationType.FLIGHT: "Fly",
    TransportationType.FERRY: "Ferry",
    TransportationType.TRAIN: "Train",
}

Line = Tuple[str, str, int]


def _format_day(value: Optional[dt.date], with_year: bool = True) -> str:
    if value is None:
        return ""
    text = f"{value.day} {MONTHS_ID[value.month - 1]}"
    return f"{text} {value.year}" if with_year else text


def _wrap_text(text: str, width: int) -> List[str]:
    words = text.split()
    if not words:
        return [""]
    lines: List[str] = []
    current = words[0]
    for word in words[1:]:
        if len(current) + 1 + len(word) > width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}"
    lines.append(current)
    return lines


def load_business_trip(db: Session, activity_id: int, requester_id: int) -> Activity:
    message = "Activity not found or not a business trip"
    try:
        activity = load_activity_with_children(db, activity_id, requester_id)
    except ActivityNotFoundError:
        raise ActivityNotFoundError(message) from None
    if not activity.is_business_trip:
        raise ActivityNotFoundError(message)
    return activity


def itinerary_filename(activity: Activity) -> str:
    employee = (activity.employee.name if activity.employee else "trip").replace(" ", "_")
    return f"itinerary_{employee}_{activity.date.isoformat()}.pdf"


def _travel_lines(activity: Activity) -> List[Line]:
    transport = TRANSPORT_VERBS.get(activity.transportation_type, "Fly")
    departure = _format_day(activity.departure_date or activity.date)
    lines: List[Line] = [
        (
            f"{departure} - {transport} {activity.transportation_from or ''} to {activity.destination or ''}",
            "Helvetica-Bold",
            9,
        ),
        (activity.transportation_name or "", "Helvetica-Bold", 9),
        (f"Booking Kode : {activity.booking_flight_no or ''}", "Helvetica", 9),
        (f"{activity.departure_from or ''} - {activity.arrival_to or ''}", "Helvetica", 9),
    ]
    if activity.daily_activities:
        lines.append(("", "Helvetica", 9))
    for day in activity.daily_activities:
        lines.append((_format_day(day.date, with_year=False), "Helvetica", 9))
        names = ", ".join(item.name for item in day.activity_items)
        for chunk in _wrap_text(names, 45):
            lines.append((chunk, "Helvetica", 9))
    return lines


def _hotel_lines(activity: Activity) -> List[Line]:
    lines: List[Line] = []
    stays = [day for day in activity.daily_activities if day.need_hotel]
    for index, day in enumerate(stays):
        if day.hotel_check_in and day.hotel_check_out:
            lines.append((f"{_format_day(day.hotel_check_in)} - {_format_day(day.hotel_check_out)}", "Helvetica-Bold", 9))
        if day.hotel_name:
            lines.append((day.hotel_name, "Helvetica-Bold", 9))
        if day.hotel_address:
            for chunk in _wrap_text(day.hotel_address, 45):
                lines.append((chunk, "Helvetica", 9))
        if index < len(stays) - 1:
            lines.append(("", "Helvetica", 9))
    return lines


def _draw_divider(pdf: canvas.Canvas, x: float, top: float, bottom: float) -> None:
    pdf.line(x, top, x, bottom)


def render_itinerary_pdf(activity: Activity) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    margin = 2 * cm
    column_gap = 1 * cm
    column_width = (width - 2 * margin - column_gap) / 2
    line_height = 0.5 * cm
    pdf.setTitle(f"Trip Itinerary {activity.employee.name}")

    logo_path = settings.itinerary_logo_path
    if logo_path and logo_path.exists():
        try:
            logo = ImageReader(str(logo_path))
            logo_width, logo_height = logo.getSize()
            scale = min(4 * cm / logo_width, 2 * cm / logo_height)
            pdf.drawImage(
                logo,
                width - margin - logo_width * scale,
                height - 1 * cm - logo_height * scale,
                width=logo_width * scale,
                height=logo_height * scale,
                mask="auto",
            )
        except OSError:
            logger.warning("Itinerary logo %s could not be embedded", logo_path, exc_info=True)

    y = height - 4 * cm
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(margin, y, f"Trip Itinerary {MONTHS_ID[activity.date.month - 1]} {activity.date.year}")
    y -= 0.7 * cm
    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(
        margin,
        y,
        f"{activity.employee.name} (TTL {_format_day(activity.birth_date)}, {activity.id_card or ''})",
    )
    y -= 0.9 * cm

    left = _travel_lines(activity)
    right = _hotel_lines(activity)
    divider_x = margin + column_width + column_gap / 2
    top = y
    for index in range(max(len(left), len(right))):
        if y < margin:
            _draw_divider(pdf, divider_x, top + line_height, y)
            pdf.showPage()
            y = height - margin
            top = y
        for column, lines in ((0, left), (1, right)):
            if index < len(lines):
                text, font, size = lines[index]
                pdf.setFont(font, size)
                pdf.drawString(margin + column * (column_width + column_gap), y, text)
        y -= line_height
    _draw_divider(pdf, divider_x, top + line_height, y)

    pdf.save()
    buffer.seek(0)
    return buffer.read()
