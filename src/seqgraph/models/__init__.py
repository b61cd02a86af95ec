"""Pydantic data models for seqgraph."""

# Snapshots nest recursively; resolve the forward reference once
from seqgraph.models.snapshot import BlockSnapshot

BlockSnapshot.model_rebuild()
