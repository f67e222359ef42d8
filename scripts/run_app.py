#!/usr/bin/env python
"""
Open the price simulator in Streamlit.

Usage:
    python scripts/run_app.py [extra streamlit options]
"""
import subprocess
import sys
from pathlib import Path

SIMULATOR = Path(__file__).resolve().parent.parent / 'src' / 'shop_pricing' / 'ui' / 'app_streamlit.py'


def main(extra_args: list[str]) -> int:
    if not SIMULATOR.is_file():
        print(f"Simulator script missing: {SIMULATOR}")
        return 1

    print("Price simulator starting, Ctrl+C to quit")
    try:
        return subprocess.call(
            [sys.executable, '-m', 'streamlit', 'run', str(SIMULATOR), *extra_args],
            cwd=str(SIMULATOR.parents[3]),
        )
    except KeyboardInterrupt:
        print("\nSimulator closed.")
        return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
