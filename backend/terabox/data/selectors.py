# ------------------------------ IMPORTS ------------------------------
from dataclasses import dataclass

# ------------------------------ UPLOAD SELECTORS ------------------------------

FILE_INPUT_SELECTOR = 'input#h5Input0'

# File listing; first row is the newest item
FIRST_ROW_SELECTOR = 'tbody tr:first-child'
ROW_BY_ID_SELECTOR = 'tbody tr[data-id="{row_id}"]'
ROW_ID_ATTRIBUTE = 'data-id'
ROW_CHECKBOX_SELECTOR = '.wp-s-pan-table__body-row--checkbox-block.is-select'

# Upload panel signals, not rendered by every UI variant
UPLOAD_SUCCESS_SELECTOR = '.upload-list-item.is-success, .upload-panel .status-success'
UPLOAD_PROGRESS_SELECTOR = '.upload-list-item .upload-progress-text'

# ------------------------------ SHARE SELECTORS ------------------------------

SHARE_BUTTON_SELECTOR = '[title="Share"]'
COPY_LINK_BUTTON_SELECTOR = '.private-share-btn'
LINK_TEXT_SELECTOR = '.copy-link-content p.text'

# ------------------------------ SELECTOR SET ------------------------------

@dataclass(frozen=True)
class UploadSelectors:
    """Selectors the upload state machine depends on."""
    file_input: str = FILE_INPUT_SELECTOR
    first_row: str = FIRST_ROW_SELECTOR
    row_by_id: str = ROW_BY_ID_SELECTOR
    row_id_attribute: str = ROW_ID_ATTRIBUTE
    row_checkbox: str = ROW_CHECKBOX_SELECTOR
    upload_success: str = UPLOAD_SUCCESS_SELECTOR
    upload_progress: str = UPLOAD_PROGRESS_SELECTOR
    share_button: str = SHARE_BUTTON_SELECTOR
    copy_link_button: str = COPY_LINK_BUTTON_SELECTOR
    link_text: str = LINK_TEXT_SELECTOR

    def row(self, row_id: str) -> str:
        """Selector for the listing row with the given identifier."""
        return self.row_by_id.format(row_id=row_id.replace('"', '\\"'))

    def checkbox_in(self, row_selector: str) -> str:
        """Selection control scoped to one row."""
        return f"{row_selector} {self.row_checkbox}"

# ------------------------------ END OF FILE ------------------------------
