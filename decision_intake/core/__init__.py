"""
Core pipeline components for Decision Intake.
"""
