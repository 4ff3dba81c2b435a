"""
Evaluation Module
=================

This module contains scripts for validating the window features:

1. compare_methods.py - Rolling counter vs naive self-join (agreement + runtime)

"""

__version__ = "1.0.0"
