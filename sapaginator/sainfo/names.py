from sapaginator.typing import SAModel
from .models import unaliased_class


def model_name(Model: SAModel) -> str:
    """ Get the name of the Model for this class """
    # We can't do `Model.__name__` because we can be given a type of an aliased class
    return unaliased_class(Model).__name__
