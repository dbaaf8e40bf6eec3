"""Command-line entry points: tex2png (client) and tex2png-server."""
