"""CSV writing helpers (RFC 4180 quoting via the stdlib ``csv`` module)."""

from __future__ import annotations

import csv
import io
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Sequence

from fastapi.responses import StreamingResponse

CSV_MEDIA_TYPE = "text/csv"


def format_decimal(value: Decimal, places: int = 2) -> str:
    """Fixed-point rendering used in exports (``45`` → ``45.00``)."""
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def render_csv(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render *header* + *rows* as CSV text.

    Fields containing a comma, quote or line break are quoted and embedded
    quotes doubled. ``None`` becomes an empty field.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def csv_response(content: str, filename: str) -> StreamingResponse:
    """Wrap CSV text in a download response."""
    return StreamingResponse(
        iter([content]),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
