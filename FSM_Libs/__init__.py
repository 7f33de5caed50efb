"""
FSM_Libs - 0xFSM Library Modules

This package contains core functionality for the 0xFSM editor,
organized into specialized sub-packages:

- ProjStoreLib: Project file persistence, graph store and dirty-state tracking
"""

__version__ = "1.0.0"
