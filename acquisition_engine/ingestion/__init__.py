"""
Boundary decoding of collaborator payloads (decoder.decode_snapshot).
"""
