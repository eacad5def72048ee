#!/usr/bin/env python3
"""
Wrapper to run the replay tool from a source checkout.
Adds src/ to the import path before importing main.
"""
import sys
import os

# Add src to path FIRST
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

if __name__ == "__main__":
    from main import main

    if len(sys.argv) > 1 and sys.argv[1].lower() == "replay":
        sys.exit(main(sys.argv[2:]))

    print("❌ Missing mode")
    print("💡 Usage: python run.py replay <events.jsonl> [options]")
    sys.exit(1)
