from .display import OpenCVDisplay
