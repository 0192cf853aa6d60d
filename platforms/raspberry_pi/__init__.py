"""
Raspberry Pi hardware platform for the X-drive controller.
"""
