"""LMS grading and progress service."""
