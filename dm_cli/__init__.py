"""
DM CLI module.

The dm command-line tool, driving a local container controller.
"""
