from setuptools import setup
from setuptools import find_packages

config = {
    'name' : 'planar_rbd',
    'version' : '0.1.0',
    'description' : 'Planar rigid body chain dynamics and ODE integration',
    'install_requires' : [
        'numpy',
        'scipy',
        'prettytable',
    ],
    'extras_require' : {
        'test' : [
            'pytest',
        ],
    },
    'python_requires' : '>=3.10',
    'package_dir' : {'': 'src'},
    'packages' : find_packages('src'),
}

setup(**config)
