"""
Third-party provider adapters (OpenAI, KIE.AI, HeyGen, ElevenLabs).

Adapters take an already-resolved API key; key resolution lives in
``avatarhub.api_keys``.
"""
