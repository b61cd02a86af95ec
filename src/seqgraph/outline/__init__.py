"""Outline document model: lines, blocks, inline segments and tree building."""
