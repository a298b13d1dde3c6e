'''
HDF5 persistence for eigenvector checkpoints.

`HDF5Handler` holds the generic read/write helpers, `HDF5VectorStore` uses
them to save and load a set of eigenvectors together with their eigenvalues.
One dataset per vector is written (`evec_0000`, `evec_0001`, ...) so that a
checkpoint can be partially read back.

-------------------------------------------------------
file        :   krylov_eigsolve/common/hdf5_lib.py
-------------------------------------------------------
'''

import os
from typing import Dict, List, Optional, Protocol, Sequence, Tuple, TYPE_CHECKING, runtime_checkable

import numpy as np
import h5py

if TYPE_CHECKING:
    from .flog import Logger

####################################################### HANDLER #######################################################

class HDF5Handler:
    """
    A class for reading and writing HDF5 files.
    """

    EXTENSIONS = ('.h5', '.hdf5', '.hdf')

    ############### PRIVATE METHODS ###############

    @staticmethod
    def _allbottomkeys(group) -> List[str]:
        """
        Traverse an HDF5 group and collect the names of all datasets within it,
        including those in nested groups.
        """
        keys = []

        def _collect(obj):
            if isinstance(obj, h5py.Group):
                for value in obj.values():
                    _collect(value)
            else:
                keys.append(obj.name)

        _collect(group)
        return keys

    @staticmethod
    def file_path(directory: str, filename: str) -> str:
        """ Join and append the default extension when missing. """
        filename = filename if filename.endswith(HDF5Handler.EXTENSIONS) else filename + ".h5"
        return os.path.join(directory, filename)

    ############### PUBLIC METHODS ################

    @staticmethod
    def read_hdf5(file_path, keys=None, verbose=False, logger: Optional['Logger'] = None) -> Dict[str, np.ndarray]:
        """
        Read an HDF5 file and return a dictionary of datasets.

        Missing files and unreadable keys are reported through `logger` and
        result in an empty (or partial) dictionary; the caller decides whether
        that is fatal. The returned dictionary carries the path under "filename".
        """
        data = {}
        if not os.path.exists(file_path):
            if logger is not None:
                logger.error(f"File {file_path} does not exist")
            return data

        if not file_path.endswith(HDF5Handler.EXTENSIONS):
            if logger is not None:
                logger.error(f"File {file_path} is not an HDF5 file")
            return data

        try:
            with h5py.File(file_path, "r") as f:
                if keys is None or len(keys) == 0:
                    keys = HDF5Handler._allbottomkeys(f)
                    if verbose and logger is not None:
                        logger.info(f"Available keys: {keys}")

                for key in keys:
                    try:
                        data[key.lstrip('/')] = f[key][()]
                    except KeyError:
                        if verbose and logger is not None:
                            logger.warning(f"Key {key} not found in file {file_path}")
        except OSError as e:
            if logger is not None:
                logger.error(f"Error opening file {file_path}: {str(e)}")
            return {}

        data["filename"] = file_path
        return data

    @staticmethod
    def save_hdf5(directory, filename, data: Dict[str, np.ndarray]) -> str:
        '''
        Creates and saves a dictionary of arrays as an hdf5 file.
        - directory : target directory (created when missing)
        - filename  : name of the file to be saved
        - data      : mapping dataset name -> array
        Returns the full path of the written file.
        '''
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        path = HDF5Handler.file_path(directory, filename)
        with h5py.File(path, 'w') as hf:
            for key, value in data.items():
                arr     = np.asarray(value)
                dtype   = np.complex128 if np.iscomplexobj(arr) else np.float64
                hf.create_dataset(key, data=arr.astype(dtype))
        return path

####################################################### VECTOR STORE #######################################################

@runtime_checkable
class VectorStore(Protocol):
    """
    Persistence capability consumed by the eigensolvers.
    """

    def save(self, vectors: Sequence[np.ndarray], identifier: str, evals: Optional[np.ndarray] = None) -> None: ...

    def load(self, identifier: str) -> Tuple[List[np.ndarray], Optional[np.ndarray]]: ...

class HDF5VectorStore:
    """
    Eigenvector checkpoints stored in HDF5 files.

    Parameters
    ----------
        directory:
            Base directory for relative identifiers.
        rank, size:
            Process coordinates; with more than one process each rank writes
            its local slice into `<identifier>_rank<r>.h5`.
        logger:
            Optional logger receiving read errors.
    """

    VECTOR_KEY  = "evec_{:04d}"
    EVALS_KEY   = "evals"

    def __init__(self, directory: str = "", rank: int = 0, size: int = 1, logger: Optional['Logger'] = None):
        self.directory  = directory
        self.rank       = rank
        self.size       = size
        self.logger     = logger

    def _split(self, identifier: str) -> Tuple[str, str]:
        path                = os.path.join(self.directory, identifier) if self.directory else identifier
        directory, name     = os.path.split(path)
        for ext in HDF5Handler.EXTENSIONS:
            if name.endswith(ext):
                name = name[:-len(ext)]
                break
        if self.size > 1:
            name += f"_rank{self.rank}"
        return directory, name

    def path(self, identifier: str) -> str:
        directory, name = self._split(identifier)
        return HDF5Handler.file_path(directory, name)

    def save(self, vectors: Sequence[np.ndarray], identifier: str, evals: Optional[np.ndarray] = None) -> None:
        directory, name = self._split(identifier)
        data            = {self.VECTOR_KEY.format(i): np.asarray(v) for i, v in enumerate(vectors)}
        if evals is not None:
            data[self.EVALS_KEY] = np.asarray(evals)
        HDF5Handler.save_hdf5(directory, name, data)

    def load(self, identifier: str) -> Tuple[List[np.ndarray], Optional[np.ndarray]]:
        """
        Load all vectors stored under `identifier`.

        Raises
        ------
            FileNotFoundError:
                When the file is missing, unreadable or holds no vectors.
        """
        path = self.path(identifier)
        data = HDF5Handler.read_hdf5(path, logger=self.logger)
        keys = sorted(k for k in data if k.startswith("evec_"))
        if not keys:
            raise FileNotFoundError(f"No eigenvectors found in {path}")
        vectors = [np.asarray(data[k]) for k in keys]
        evals   = data.get(self.EVALS_KEY)
        return vectors, (np.asarray(evals) if evals is not None else None)

####################################################### EOF #######################################################
