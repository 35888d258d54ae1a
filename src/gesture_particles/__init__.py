"""
Gesture Particles
==================

A hand-gesture driven particle system: a point cloud of several thousand
particles morphs between text, a planet and a dispersed cloud depending on
the gesture the tracked hand is making.

Modules:
    - core: Shared types, errors and the gesture mailbox
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmark detection
    - recognition: Gesture classification and optional dwell filtering
    - shapes: Text rasterization and target point set generation
    - morph: Per-frame particle morphing
    - render: Visual parameter derivation and the OpenCV point renderer
    - utils: Logging and performance monitoring
"""

__version__ = "1.0.0"
__author__ = "HCI Team"
