"""Output module - serialization of normalized users to files."""

from user_aggregator.output.writer import OutputWriteError, output_path, write_users

__all__ = ["OutputWriteError", "output_path", "write_users"]
