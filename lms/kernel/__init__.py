"""
Kernel layer: persistence models shared by the engines, services and API.
"""
