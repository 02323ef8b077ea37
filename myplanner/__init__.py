"""
MyPlanner - recurring class schedule and student planner.
"""
