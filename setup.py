from setuptools import setup


def main():
    setup(name='pycrn',
          version='0.1.0',
          description='Compiler from chemical reaction network notation to '
                      'symbolic kinetic models',
          packages=['pycrn', 'pycrn.testing', 'pycrn.tests'],
          python_requires='>=3.6',
          install_requires=['numpy', 'scipy>=1.1', 'sympy>=1.6', 'networkx',
                            'ply'],
          extras_require={'test': ['pytest']},
          keywords=['chemical', 'reaction', 'network', 'kinetics', 'sde',
                    'ssa'],
          classifiers=[
            'Development Status :: 4 - Beta',
            'Intended Audience :: Science/Research',
            'License :: OSI Approved :: BSD License',
            'Operating System :: OS Independent',
            'Programming Language :: Python :: 3',
            'Topic :: Scientific/Engineering :: Bio-Informatics',
            'Topic :: Scientific/Engineering :: Chemistry',
            'Topic :: Scientific/Engineering :: Mathematics',
            ],
          )


if __name__ == '__main__':
    main()
