from .json_store import JsonStore, load_document, save_document

__all__ = ["JsonStore", "load_document", "save_document"]
