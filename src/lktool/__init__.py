"""lktool - project and local-override helper for component-based kernels."""

__version__ = "0.1.0"
