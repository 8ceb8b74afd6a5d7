from .source import PuzzleSource, clone_grid, random_seed

__all__ = ['PuzzleSource', 'clone_grid', 'random_seed']
