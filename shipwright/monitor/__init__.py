"""Release report rendering for the terminal.

Modules
-------
renderer
    ``ReportRenderer`` turns a ``ReleaseReport`` into Rich renderables:
    a per-target outcome table, the manifest platforms and the
    announcement deliveries.
"""
