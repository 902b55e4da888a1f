"""Entry point wrapper for ``python -m cantus_generator``.

Forwards execution to :func:`cantus_generator.main` so ``python -m
cantus_generator`` and the installed ``cantus-generator`` console script
behave identically.

Example
-------
The following invocation prints a ten note D dorian cantus firmus::

    python -m cantus_generator --tonic D4 --mode dorian --length 10 --seed 3
"""

from . import main

if __name__ == "__main__":
    main()
