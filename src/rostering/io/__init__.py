# rostering/io - Input/output handling
from .csv_loader import load_employees, load_shifts, save_employees, save_shifts
from .excel_export import export_roster_to_excel
from .pdf_export import export_roster_to_pdf

__all__ = [
    "load_employees",
    "save_employees",
    "load_shifts",
    "save_shifts",
    "export_roster_to_excel",
    "export_roster_to_pdf",
]
