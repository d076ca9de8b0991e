"""
The MODEL layer contains pure data structures and geometry.
It has NO knowledge of the GUI (Qt) or the frame loop.
It deals with Points, Rotations, Frames and Poses.
"""
