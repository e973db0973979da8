"""Configuration package for the ecosystem simulator.

Default values live as module-level constants in the topical modules
(world.py, creatures.py, food.py, reproduction.py). The dataclasses in
simulation_config.py gather them into one explicit value that is threaded
through the engine and its systems; nothing reads configuration from
global mutable state.
"""
