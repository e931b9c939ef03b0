# MIT License
# Copyright (c) 2025 Hashborn

"""Single-owner ERC-4337 style smart account with an in-process execution environment."""

__version__ = "0.1.0"
