"""
IVR package: PerCL building, menu flow and FreeClimb messaging for the bakery line.
"""
