"""
Services - persistence-facing orchestration of the grading and progress engines.
"""
