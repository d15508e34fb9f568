"""Packaged data files for rdcall."""
