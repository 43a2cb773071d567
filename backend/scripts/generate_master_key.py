"""Print a fresh master key for API_KEY_ENCRYPTION_KEY.

Run: python -m scripts.generate_master_key
"""

import sys
import os

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main():
    from core.crypto import generate_master_key

    print(generate_master_key())


if __name__ == "__main__":
    main()
