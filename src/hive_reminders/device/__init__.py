"""
In-process stand-ins for the platform facilities the engine talks to:
local notifications (+ delivery loop) and the periodic background trigger.
"""
