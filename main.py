#!/usr/bin/env python3
"""
Gesture Particles
Hand-gesture driven particle morphing.

Usage:
    python main.py                     # Camera + hand tracking
    python main.py --no-camera         # Keyboard gestures only (keys 1-5)
    python main.py --tier constrained  # Fewer, larger particles
    python main.py --debug             # Debug logging
"""

import os
import sys

# Add src to path so the app runs from a checkout
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from gesture_particles.main import main

if __name__ == "__main__":
    sys.exit(main())
