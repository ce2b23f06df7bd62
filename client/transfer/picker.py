"""File selection collaborators."""

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

FileFilters = list[tuple[str, str]]  # (label, glob pattern)


class FilePicker(ABC):
    """Asks the user for a file to send."""

    @abstractmethod
    async def pick_file(self, filters: FileFilters) -> str | None:
        """Return the chosen path, or None if the user cancelled."""


class TkFilePicker(FilePicker):
    """Native open-file dialog via tkinter, run off the event loop."""

    async def pick_file(self, filters: FileFilters) -> str | None:
        return await asyncio.to_thread(self._ask, filters)

    @staticmethod
    def _ask(filters: FileFilters) -> str | None:
        import tkinter as tk
        from tkinter import filedialog

        # Tkinter requires a root window, but we don't want to show it
        root = tk.Tk()
        root.withdraw()
        root.attributes("-topmost", True)
        try:
            path = filedialog.askopenfilename(
                title="Select a file to send", filetypes=filters
            )
        finally:
            root.destroy()

        # Empty string/tuple when the dialog is dismissed
        if not path:
            return None
        return str(path)
