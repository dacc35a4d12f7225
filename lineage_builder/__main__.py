"""Entry point for ``python -m lineage_builder``."""

from lineage_builder.cli import app

if __name__ == "__main__":
    app(prog_name="lineage-build")
