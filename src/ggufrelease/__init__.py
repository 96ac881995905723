"""
gguf-release: quantize a GGUF model with llama.cpp, write hub model cards and
checksums, and publish the result to the Hugging Face Hub.
"""

__version__ = "0.1.0"
