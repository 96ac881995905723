"""
Artifact integrity utilities.

Writes and verifies the SHA256SUMS.txt manifest that sits next to the quantized
GGUF files in the output directory.
"""
