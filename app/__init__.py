"""
Medical Analysis Assistant - medical report interpretation service

Forwards report images, PDFs and questions to a hosted multimodal model
and returns its answer, sanitized, with a safety disclaimer.

IMPORTANT: This is NOT a diagnosis tool. It must NEVER replace a doctor.
"""

__version__ = "1.0.0"
