"""
Reading companion core package.

The ``reader`` subpackage holds the reading session and adaptive text
engine: durable settings and page positions, session statistics, the
bionic-reading transform, line focus navigation, and a text-to-speech
sequencer that turns pages when an utterance finishes. Rendering, text
extraction and speech synthesis stay outside and are reached through
small protocols.
"""
