from .file_picker import FilePicker, TkFilePicker

__all__ = ["FilePicker", "TkFilePicker"]
