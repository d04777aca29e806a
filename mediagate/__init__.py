"""mediagate - Generative Media Gateway.

Proxies Google's generative-media APIs and chains them into workflows:
- Text-to-speech (Gemini TTS)
- Image generation (Imagen)
- Video generation (Veo, long-running operations)
- Workflow runner (sequential or parallel multi-step generation)
"""

__version__ = "0.1.0"
