"""
visualization package

Board rendering and the command-line rain demo.
"""
