"""Built-in card types.

Each module exposes ``ENTRY``, the registry entry for its card type.
"""
