from notedigest.models.note import Note, Summary

__all__ = ["Note", "Summary"]
