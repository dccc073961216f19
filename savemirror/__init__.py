"""savemirror: mirror a save-game directory between two machines over SSH"""
__version__ = "1.0.0"
