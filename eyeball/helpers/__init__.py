"""Pure helpers: no I/O beyond reading files, no imports from services or interfaces."""
