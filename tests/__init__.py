"""Unit tests for TTS Reader.

This package contains test modules for all components of the TTS Reader application.
Tests use pytest with asyncio support and replace HTTP, audio devices and tkinter with fakes.
"""
