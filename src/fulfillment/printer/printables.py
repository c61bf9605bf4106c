"""Printable specifications for print-on-demand books.

Every book is printed at the same trim size and paper; only the binding
(hardcover casewrap or perfect-bound paperback) and the ink (full color or
black & white) vary. The manufacturing files live at a fixed location derived
from the book id.
"""

from fulfillment.config import DEFAULT_PRINT_SOURCE_TEMPLATE


def pod_package_id(hardcover: bool, color: bool) -> str:
    """Provider package id for the binding/ink combination."""
    return f"0850X1100{'FC' if color else 'BW'}STD{'CW' if hardcover else 'PB'}060UW444MXX"


def publication_url(book_id: str, template: str = DEFAULT_PRINT_SOURCE_TEMPLATE) -> str:
    return template.format(book_id=book_id)


def cover_url(book_id: str, hardcover: bool, template: str = DEFAULT_PRINT_SOURCE_TEMPLATE) -> str:
    return f"{publication_url(book_id, template)}/Cover_{'Casewrap' if hardcover else 'PerfectBound'}.pdf"


def interior_url(book_id: str, template: str = DEFAULT_PRINT_SOURCE_TEMPLATE) -> str:
    return f"{publication_url(book_id, template)}/Content.pdf"
