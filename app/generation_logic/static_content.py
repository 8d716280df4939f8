"""User-facing wizard strings. The front end is Arabic (RTL)."""

EXTRACTION_LOADING_MESSAGE = "...جاري تحليل المستند واستخلاص البيانات"
GENERATION_LOADING_MESSAGE = "...جاري إنشاء المستند(ات) النهائية"

EXTRACTION_ERROR_MESSAGE = (
    "حدث خطأ أثناء تحليل المستند. يرجى المحاولة مرة أخرى بملف آخر أو التأكد من وضوح المستند."
)
GENERATION_ERROR_MESSAGE = "حدث خطأ أثناء إنشاء المستند(ات). يرجى المحاولة مرة أخرى."
