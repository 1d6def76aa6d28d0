"""esbook: a notebook server that evaluates cells and renders their outputs."""

__version__ = "1.0.0"
