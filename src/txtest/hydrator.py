from inspect import Parameter
from typing import Any, Dict, List, Optional, Type


class Hydrator:
    """Object responsible for casting rows from the database to a model"""

    fallback: Type[object] = dict
    """The model type that will be used if there is none passed in the
    hydrate method"""

    def hydrate_many(
        self, rows: List[Dict[str, Any]], model: Optional[Type[object]] = None
    ) -> List[Any]:
        return [self.hydrate(row, model=model) for row in rows]

    def hydrate(
        self,
        data: Dict[str, Any],
        model: Optional[Type[object]] = Parameter.empty,
    ):
        """Perform casting operation

        Args:
            data (Dict[str, Any]): Raw row from the database
            model (Type[object], optional): The model that will do the
                casting. If no value is passed, it will use whatever the
                Hydrator's fallback value is set to. Defaults to
                `Parameter.empty`.

        Returns:
            Any: The row cast into the model
        """
        if model in (Parameter.empty, None):
            model = self.fallback
        if model is dict:
            return dict(data)
        if model in (str, int, float, bool):
            return model(*data.values())
        return model(**data)
