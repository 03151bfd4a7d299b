"""
Bundled Loading Scripts.

Each module is a standalone loading script: ``trellis test`` and
``load_dataset`` import it from its file path.
"""
