"""
Sling UI
matplotlib presentation, HUD and input for the slingshot game.
"""
