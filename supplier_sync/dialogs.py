"""Tk file dialogs used for import selection and export destination."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    import tkinter as tk


SPREADSHEET_FILETYPES = [("Excel workbook", "*.xlsx")]


def pick_import_file(parent: Optional["tk.Misc"] = None) -> Optional[str]:
    from tkinter import filedialog

    path = filedialog.askopenfilename(
        parent=parent,
        title="Select supplier spreadsheet",
        filetypes=SPREADSHEET_FILETYPES,
    )
    return path or None


def pick_export_path(default_name: str, parent: Optional["tk.Misc"] = None) -> Optional[str]:
    from tkinter import filedialog

    path = filedialog.asksaveasfilename(
        parent=parent,
        title="Export suppliers",
        initialfile=default_name,
        defaultextension=".xlsx",
        filetypes=SPREADSHEET_FILETYPES,
    )
    return path or None


__all__ = ["pick_export_path", "pick_import_file"]
