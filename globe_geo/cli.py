"""
CLI entry point for the globe-geo command.
"""
from globe_geo.runner import main

# Re-export main for the console_scripts entry point
__all__ = ['main']

if __name__ == '__main__':
    main()
