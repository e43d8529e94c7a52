#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The static list of device models known to support LAN control.

Devices with other models are still registered when they answer a scan; the list
only drives a warning, since it usually lags newly released models.
"""

from __future__ import annotations

from .internal_types import *
from .util import CaseInsensitiveDict

LAN_MODELS: List[str] = [
    'H6046', 'H6047', 'H6051', 'H6052', 'H6056', 'H6059', 'H6061', 'H6062',
    'H6065', 'H6066', 'H6067', 'H6072', 'H6073', 'H6076', 'H6078', 'H6079',
    'H6087', 'H6088', 'H608A', 'H608B', 'H608C', 'H608D',
    'H610A', 'H610B', 'H6110', 'H6117', 'H611A', 'H611B', 'H611C', 'H611Z',
    'H6141', 'H6143', 'H6144', 'H6159', 'H6163', 'H6168', 'H6172', 'H6173',
    'H6175', 'H6176', 'H618A', 'H618C', 'H618E', 'H618F', 'H619A', 'H619B',
    'H619C', 'H619D', 'H619E', 'H619Z', 'H61A0', 'H61A1', 'H61A2', 'H61A3',
    'H61A5', 'H61A8', 'H61B2', 'H61B5', 'H61BA', 'H61BC', 'H61BE', 'H61C3',
    'H61C5', 'H61D3', 'H61D5', 'H61E0', 'H61E1', 'H61F5',
    'H7012', 'H7013', 'H7020', 'H7021', 'H7028', 'H7033', 'H7041', 'H7042',
    'H7050', 'H7051', 'H7052', 'H7055', 'H705A', 'H705B', 'H705C', 'H705D',
    'H705E', 'H705F', 'H7060', 'H7061', 'H7062', 'H7063', 'H7065', 'H7066',
    'H706A', 'H706B', 'H706C', 'H7075', 'H70A1', 'H70B1', 'H70B3', 'H70B5',
    'H70BC', 'H70C1', 'H70C2', 'H70C4', 'H70C5', 'H70D1',
    'H8022',
  ]
"""Models known to support the Govee LAN API."""

class LanCapabilityList:
    """A case-insensitive allow-list of LAN-controllable device models."""

    _models: CaseInsensitiveDict[str]
    """Maps each model (case-insensitively) to its canonical spelling."""

    def __init__(self, models: Optional[Iterable[str]]=None, extra_models: Optional[Iterable[str]]=None) -> None:
        self._models = CaseInsensitiveDict()
        for model in (LAN_MODELS if models is None else models):
            self.add(model)
        if extra_models is not None:
            for model in extra_models:
                self.add(model)

    def add(self, model: str) -> None:
        self._models[model] = model

    def canonical_model(self, model: str) -> Optional[str]:
        return self._models.get(model)

    def supports_lan(self, model: str) -> bool:
        return model in self._models

    def __contains__(self, model: object) -> bool:
        return isinstance(model, str) and model in self._models

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._models.values()))
