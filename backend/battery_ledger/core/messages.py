"""
Localized user-facing messages (Arabic first, English second)
"""
from typing import Optional
from fastapi import Header

from battery_ledger.core.config import settings


MESSAGES = {
    # Generic
    "server_error": {
        "ar": "حدث خطأ في الخادم",
        "en": "An unexpected server error occurred",
    },
    "validation_error": {
        "ar": "البيانات المدخلة غير صحيحة",
        "en": "The submitted data is invalid",
    },
    "required_fields": {
        "ar": "يرجى ملء جميع الحقول المطلوبة",
        "en": "Please fill all required fields",
    },
    "created": {"ar": "تم الإنشاء بنجاح", "en": "Created successfully"},
    "updated": {"ar": "تم التحديث بنجاح", "en": "Updated successfully"},
    "deleted": {"ar": "تم الحذف بنجاح", "en": "Deleted successfully"},
    "blocked": {"ar": "تم الحظر بنجاح", "en": "Blocked successfully"},
    "unblocked": {"ar": "تم إلغاء الحظر بنجاح", "en": "Unblocked successfully"},
    "day_cleared": {"ar": "تم مسح جميع بيانات اليوم", "en": "All entries for the day were cleared"},
    "recalculated": {"ar": "تمت إعادة احتساب الأرصدة والكميات", "en": "Balances and quantities recalculated"},
    "too_many_requests": {
        "ar": "عدد كبير من الطلبات، يرجى المحاولة لاحقاً",
        "en": "Too many requests. Please try again later.",
    },

    # Not found
    "customer_not_found": {"ar": "لم يتم العثور على العميل", "en": "Customer not found"},
    "supplier_not_found": {"ar": "لم يتم العثور على المورد", "en": "Supplier not found"},
    "battery_type_not_found": {"ar": "لم يتم العثور على نوع البطارية", "en": "Battery type not found"},
    "purchase_not_found": {"ar": "لم يتم العثور على فاتورة الشراء", "en": "Purchase not found"},
    "sale_not_found": {"ar": "لم يتم العثور على فاتورة البيع", "en": "Sale not found"},
    "daily_purchase_not_found": {"ar": "لم يتم العثور على سطر المشتريات", "en": "Daily purchase not found"},
    "voucher_not_found": {"ar": "لم يتم العثور على السند", "en": "Voucher not found"},
    "note_not_found": {"ar": "لم يتم العثور على الملاحظة", "en": "Note not found"},
    "checklist_item_not_found": {"ar": "لم يتم العثور على عنصر القائمة", "en": "Checklist item not found"},
    "task_not_found": {"ar": "لم يتم العثور على المهمة", "en": "Task not found"},
    "task_group_not_found": {"ar": "لم يتم العثور على مجموعة المهام", "en": "Task group not found"},

    # Validation
    "items_required": {
        "ar": "يجب إضافة صنف واحد على الأقل",
        "en": "At least one line item is required",
    },
    "quantity_positive": {
        "ar": "الكمية يجب أن تكون أكبر من صفر",
        "en": "Quantity must be greater than zero",
    },
    "quantity_not_negative": {
        "ar": "الكمية لا يمكن أن تكون سالبة",
        "en": "Quantity cannot be negative",
    },
    "price_positive": {
        "ar": "السعر يجب أن يكون أكبر من صفر",
        "en": "Price must be greater than zero",
    },
    "price_not_negative": {
        "ar": "السعر لا يمكن أن يكون سالباً",
        "en": "Price cannot be negative",
    },
    "discount_not_negative": {
        "ar": "الخصم لا يمكن أن يكون سالباً",
        "en": "Discount cannot be negative",
    },
    "amount_positive": {
        "ar": "المبلغ يجب أن يكون أكبر من صفر",
        "en": "Amount must be greater than zero",
    },
    "unknown_battery_type": {
        "ar": "نوع البطارية غير موجود: {value}",
        "en": "Unknown battery type: {value}",
    },
    "unknown_customer": {"ar": "العميل غير موجود: {value}", "en": "Unknown customer: {value}"},
    "unknown_supplier": {"ar": "المورد غير موجود: {value}", "en": "Unknown supplier: {value}"},
    "unknown_entity": {
        "ar": "الجهة غير موجودة: {value}",
        "en": "Unknown customer or supplier: {value}",
    },
    "battery_type_exists": {
        "ar": "نوع البطارية موجود مسبقاً: {value}",
        "en": "Battery type already exists: {value}",
    },
    "battery_type_in_use": {
        "ar": "لا يمكن حذف نوع بطارية مستخدم في فواتير",
        "en": "Battery type is referenced by transactions and cannot be deleted",
    },
    "customer_has_sales": {
        "ar": "لا يمكن حذف عميل لديه فواتير بيع",
        "en": "Customer has sales and cannot be deleted",
    },
    "supplier_has_purchases": {
        "ar": "لا يمكن حذف مورد لديه فواتير شراء",
        "en": "Supplier has purchases and cannot be deleted",
    },
    "invalid_payment_method": {
        "ar": "طريقة الدفع غير صحيحة: {value}",
        "en": "Invalid payment method: {value}",
    },
    "invalid_entity_type": {
        "ar": "نوع الجهة غير صحيح: {value}",
        "en": "Invalid entity type: {value}",
    },
    "invalid_voucher_type": {
        "ar": "نوع السند غير صحيح: {value}",
        "en": "Invalid voucher type: {value}",
    },
    "invalid_code": {
        "ar": "صيغة الرمز غير صحيحة: {value}",
        "en": "Invalid code format: {value}",
    },
    "code_exists": {
        "ar": "الرمز مستخدم مسبقاً: {value}",
        "en": "Code is already in use: {value}",
    },
    "block_reason_required": {
        "ar": "يرجى إدخال سبب الحظر",
        "en": "A block reason is required",
    },
}


class MessageError(ValueError):
    """ValueError that carries a message key so callers can localize it"""

    def __init__(self, key: str, **params):
        self.key = key
        self.params = params
        super().__init__(get_message(key, settings.DEFAULT_LANGUAGE, **params))


def get_message(key: str, lang: Optional[str] = None, **params) -> str:
    """Look up a message in the requested language, falling back to the default"""
    lang = lang or settings.DEFAULT_LANGUAGE
    entry = MESSAGES.get(key)
    if not entry:
        return key
    text = entry.get(lang) or entry.get(settings.DEFAULT_LANGUAGE) or next(iter(entry.values()))
    return text.format(**params) if params else text


def localize_error(error: Exception, lang: Optional[str] = None) -> str:
    if isinstance(error, MessageError):
        return get_message(error.key, lang, **error.params)
    return str(error)


def parse_language(accept_language: Optional[str]) -> str:
    """Pick the first supported language from an Accept-Language header"""
    if not accept_language:
        return settings.DEFAULT_LANGUAGE
    for part in accept_language.split(","):
        code = part.split(";")[0].strip().lower()[:2]
        if code in settings.supported_languages:
            return code
    return settings.DEFAULT_LANGUAGE


async def get_language(accept_language: Optional[str] = Header(None)) -> str:
    """Dependency resolving the response language for the current request"""
    return parse_language(accept_language)
