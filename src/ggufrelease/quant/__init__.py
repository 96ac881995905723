"""Input resolution and llama.cpp quantization for release runs."""
