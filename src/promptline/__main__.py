"""Module entrypoint for `python -m promptline`."""

try:
    from .cli import run
except ImportError:
    # Executed as a plain script outside package context.
    from promptline.cli import run


if __name__ == "__main__":
    raise SystemExit(run())
