"""Administration CLI for the metadata depot (``depot``)."""
